# All application routes are versioned under v1/
from . import v1 as v1
