# platewatch/seed.py

import logging

from .config import DEFAULT_CAMERA_ID
from .models import PlateStatus
from .store import PlateStore

logger = logging.getLogger(__name__)

SAMPLE_PLATES = [
    {"plate_number": "ABC1234", "status": PlateStatus.STOLEN.value,
     "description": "Stolen vehicle - Honda Civic", "vehicle_model": "Honda Civic 2020", "vehicle_color": "Black"},
    {"plate_number": "XYZ9876", "status": PlateStatus.SUSPICIOUS.value,
     "description": "Under investigation", "vehicle_model": "Toyota Corolla", "vehicle_color": "Silver"},
    {"plate_number": "VIP0001", "status": PlateStatus.VIP.value,
     "description": "Authorized VIP access", "vehicle_model": "BMW X5", "vehicle_color": "White"},
]

DEFAULT_CAMERA = {"name": "Mobile Camera", "location": "Mobile surveillance", "latitude": -23.5505, "longitude": -46.6333}


def seed_defaults(store: PlateStore) -> bool:
    """Inserts sample watch-list entries and the default camera into an empty database."""
    if store.count_monitored_plates() > 0:
        return False

    if store.get_camera(DEFAULT_CAMERA_ID) is None:
        store.add_camera(id=DEFAULT_CAMERA_ID, **DEFAULT_CAMERA)
    for plate in SAMPLE_PLATES:
        store.add_monitored_plate(**plate)

    logger.info(f"Seeded {len(SAMPLE_PLATES)} monitored plates and the default camera")
    return True
