"""
Rebuild the cattle read models from the event log (diagnostics / recovery)
"""
import logging

from herdbook.infrastructure.db.session import get_db
from herdbook.readmodels.projectors.cattle import CattleProjector
from herdbook.infrastructure.db.models import CattleModel, CattleEventModel

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

db = next(get_db())

try:
    logger.info("Rebuilding CattleProjector read models...")
    projector = CattleProjector(db)

    # Drop read models and checkpoint so every event is replayed
    projector.reset()
    db.commit()

    count = projector.run()
    db.commit()

    logger.info("Processed events: %d", count)
    logger.info(
        "Cattle: %d, events: %d",
        db.query(CattleModel).count(),
        db.query(CattleEventModel).count(),
    )

except Exception:
    logger.exception("Rebuild failed")
    raise

finally:
    db.close()
