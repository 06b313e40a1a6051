from .errors import BalancerError, NilNodeError, NodeUnavailableError
from .node import STATUS_UNAVAILABLE, Metric, Node
from .options import NODE_TIMEOUT, Options
from .prober import ProbeOutcome, ProbeResult, Prober
from .stats import ProbeStats
