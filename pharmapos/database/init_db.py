"""Create tables and the bootstrap admin. Run on application start-up."""
import logging

from pharmapos.database.base import Base
from pharmapos.database.engine import engine
from pharmapos.database.session import session_scope
from pharmapos.models import import_all_models
from pharmapos.services.user_service import ensure_bootstrap_admin

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    import_all_models()
    Base.metadata.create_all(bind=bind or engine)

    with session_scope(bind) as db:
        ensure_bootstrap_admin(db)
