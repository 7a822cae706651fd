"""Pydantic models for API schemas."""

from .common import *
from .auth import *
from .records import *
from .schedules import *
from .patients import *
from .education import *
from .dashboard import *
