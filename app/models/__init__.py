# Import all models here so they're registered with SQLAlchemy
from app.models.setting import Setting
from app.models.record import AttendanceRecord
from app.models.person import PersonAggregate, Category, Zone, person_key

__all__ = ['Setting', 'AttendanceRecord', 'PersonAggregate', 'Category', 'Zone', 'person_key']
