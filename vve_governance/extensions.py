from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flasgger import Swagger

# --- Flask Extensions ---
db = SQLAlchemy()
migrate = Migrate()
cors = CORS()
swagger = Swagger()
limiter = Limiter(key_func=get_remote_address)
