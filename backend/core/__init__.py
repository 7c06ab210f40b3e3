# Core module exports
from .config import *
from .database import db, client, create_database_indexes
from .dependencies import get_current_user, get_admin_user, security, create_access_token, decode_access_token
from .errors import NotificationError, NotFoundError, ConfigurationError, DeliveryError
