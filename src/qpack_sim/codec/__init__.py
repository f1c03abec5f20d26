from .header_codec import Header, HeaderCodec, HeaderDecodeError
from .indexing import IndexingStrategy, NoPathIndexingStrategy
from .table import DynamicTable
