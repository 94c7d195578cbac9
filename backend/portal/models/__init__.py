from portal.models.school import School
from portal.models.student import Student
from portal.models.access_request import AccessRequest
from portal.models.grade import Grade
from portal.models.absence import Absence
from portal.models.notification import Notification

__all__ = ["School", "Student", "AccessRequest", "Grade", "Absence", "Notification"]
