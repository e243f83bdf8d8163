import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


# --- Database ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./platewatch.db")

# --- OCR Engine ---
OCR_BACKEND = os.getenv("OCR_BACKEND", "easyocr")  # easyocr | paddleocr
LANG_LIST = ['en']
OCR_USE_GPU = _env_bool("OCR_USE_GPU", "false")
OCR_POOL_SIZE = int(os.getenv("OCR_POOL_SIZE", "1"))
# Load every pooled engine at startup instead of on the first request
OCR_WARMUP = _env_bool("OCR_WARMUP", "false")

# Restricted character set (Allowlist)
OCR_ALLOWLIST = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# --- Image Normalizer ---
NORMALIZE_MAX_WIDTH = 800
NORMALIZE_MAX_HEIGHT = 600
BINARIZE_THRESHOLD = 128

# --- Upload Settings ---
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.webp'}

BASE_DIR = Path(__file__).parent.parent
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", BASE_DIR / "uploads"))

# --- Cameras ---
DEFAULT_CAMERA_ID = int(os.getenv("DEFAULT_CAMERA_ID", "1"))

# --- E-mail Alerts ---
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM", SMTP_USER or "platewatch@localhost")
SMTP_STARTTLS = _env_bool("SMTP_STARTTLS", "true")

# Format: "stolen:a@x.com,b@x.com;suspicious:c@x.com"
ALERT_RECIPIENTS = os.getenv(
    "ALERT_RECIPIENTS",
    "stolen:security@example.com,police@example.gov;"
    "suspicious:operator@example.com,supervisor@example.com;"
    "vip:reception@example.com;"
    "blocked:security@example.com",
)
DEFAULT_ALERT_RECIPIENT = os.getenv("DEFAULT_ALERT_RECIPIENT", "operator@example.com")

# --- Startup ---
AUTO_SEED = _env_bool("AUTO_SEED", "true")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# --- AWS S3 (optional image storage) ---
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
AWS_S3_BUCKET_NAME = os.getenv("AWS_S3_BUCKET_NAME")
AWS_S3_REGION = os.getenv("AWS_S3_REGION")

S3_ENABLED = all([AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_S3_BUCKET_NAME, AWS_S3_REGION])
AWS_S3_BASE_URL = f"https://{AWS_S3_BUCKET_NAME}.s3.{AWS_S3_REGION}.amazonaws.com"
