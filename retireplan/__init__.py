"""
retireplan - Monte Carlo retirement outcome projections.

Estimates the chance that a household's savings last through life
expectancy, with median and downside balance bands in today's dollars.
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.3.0"
