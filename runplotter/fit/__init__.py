"""
Decode the Flexible and Interoperable data Transfer (FIT) protocol [1]_.

The protocol implementation is in the `_protocol` module: an incremental
decoder that is fed a file a few bytes at a time and hands back complete
messages. It relies, in turn, on a data module (`_profile`) holding the slice
of the "Profile.xlsx" file (from the FIT SDK) that running activities need.
`_reading` drives the decoder and turns its messages into records.


.. [1] https://www.thisisant.com/resources/fit

"""
from runplotter.fit._reading import read, decode_stream
from runplotter.fit._protocol import DecodeStatus, FitDecoder
