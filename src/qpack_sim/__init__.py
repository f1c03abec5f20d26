from .ack import Ack, AckAggregator, AckKind
from .frame import FrameFlags
from .seqn import SequenceAssigner
from .scheme import CompressionScheme, QPACKScheme
from .net_simulator import CompressionSimulator
