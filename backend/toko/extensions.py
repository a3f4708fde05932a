# Overview: Flask extension instances for database, migrations and in-memory carts.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .services.cart import CartStore

db = SQLAlchemy()
migrate = Migrate()
carts = CartStore()
