"""Writer capability and the session guard."""

from .stateful import StatefulWriter as StatefulWriter
from .stateful import WriterState as WriterState
from .writer import HierarchicalStreamWriter as HierarchicalStreamWriter
from .writer import StreamError as StreamError
from .writer import WriterWrapper as WriterWrapper
