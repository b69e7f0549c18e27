from aqualink.models.user import User, UserRole
from aqualink.models.water_request import RequestStatus, Urgency, WaterRequest
from aqualink.models.driver_location import DriverLocation
from aqualink.models.anomaly import Anomaly
