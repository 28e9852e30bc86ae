from .chrome import import_chrome_cpu_profile, import_chrome_timeline
from .collapsed import import_collapsed_stacks
from .stackprof import import_stackprof

__all__ = [
    "import_chrome_cpu_profile",
    "import_chrome_timeline",
    "import_collapsed_stacks",
    "import_stackprof",
]
