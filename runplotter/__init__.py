__version__ = '0.1.0'

from runplotter._types import (
    LapRecord, PlotKind, RecordStore, SampleRecord, SessionSummary,
    UnitSystem)
from runplotter._util.reader import decode
from runplotter._util import exceptions
from runplotter.units import project_plot, project_session
