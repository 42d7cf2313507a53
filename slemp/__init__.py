"""S-LEMP — provision and tear down a LEMP + Laravel host."""

__version__ = "0.1.0"
