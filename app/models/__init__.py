# FleetSync — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.vehicle import Vehicle, VehicleStatus, VehicleType   # noqa
