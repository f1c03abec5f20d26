from .scheme import CompressionScheme
from .qpack_scheme import QPACKScheme
