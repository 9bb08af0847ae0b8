from runplotter._types.records import (
    MISSING, SESSION_FIELDS, LapRecord, PlotKind, SampleRecord,
    SessionSummary, UnitSystem)
from runplotter._types.store import (
    DEFAULT_LAP_CAPACITY, DEFAULT_SAMPLE_CAPACITY, PLOT_AXES, Bounds,
    RecordStore)
from runplotter._types.frames import ActivityData
