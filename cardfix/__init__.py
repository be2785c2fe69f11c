"""cardfix - Action.Execute drop/fix simulator

An in-process mock of the activity channel between a web chat UI and a
consent bot. It reproduces how Action.Execute card buttons are silently
dropped by a renderer that only routes Action.Submit, and shows the
activity-pipeline interceptor that rewrites them before rendering.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
