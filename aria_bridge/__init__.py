"""Bridge ARIA sensor frames from a TWELITE serial gateway to a cloud channel."""

from .decoder import decode, parse_frame_line
from .models import SensorFrame

__version__ = "0.1.0"
