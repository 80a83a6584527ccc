"""Scenario engine: contract loading, scenario generation, step synthesis
and outcome simulation.
"""

__version__ = "1.0.0"
