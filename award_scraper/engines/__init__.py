"""Airline engines bundled with the package, keyed by airline id"""

from . import ac

ENGINES = {
    "AC": ac,
}
