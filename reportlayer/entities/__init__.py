"""Entity definitions available to datasources."""

from reportlayer.entities.course import COURSE
from reportlayer.entities.course_modules import COURSE_MODULES
from reportlayer.entities.enrolment import ENROLMENT
from reportlayer.entities.samples import SAMPLES
from reportlayer.entities.user import USER

__all__ = ["COURSE", "COURSE_MODULES", "ENROLMENT", "SAMPLES", "USER"]
