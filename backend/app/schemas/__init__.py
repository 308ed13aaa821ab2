"""Pydantic schemas for the back-office API."""

from app.schemas.base import *
from app.schemas.auth import *
from app.schemas.org import *
from app.schemas.destination import *
from app.schemas.property import *
from app.schemas.booking import *
from app.schemas.contact import *
from app.schemas.legal_document import *
from app.schemas.equipment_request import *
from app.schemas.pricing import *
from app.schemas.audit import *
from app.schemas.activity_provider import *
from app.schemas.imports import *
