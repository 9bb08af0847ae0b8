"""
Read Training Center XML (TCX) files [1]_.

`_tree` parses the XML into activities, laps, tracks and trackpoints and
`_reading` flattens that tree into samples, laps and a session summary.


.. [1] https://www8.garmin.com/xmlschemas/TrainingCenterDatabasev2.xsd

"""
from runplotter.tcx._reading import read, flatten
from runplotter.tcx._tree import parse_tcx
