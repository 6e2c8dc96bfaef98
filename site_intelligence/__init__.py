"""
Site intelligence and optimization engine for distributed solar installation projects.
"""

__version__ = "1.0.0"
