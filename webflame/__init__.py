"""
webflame: aggregate sampled call stacks into a flame graph and serve it.
"""

__version__ = "0.1.0"
