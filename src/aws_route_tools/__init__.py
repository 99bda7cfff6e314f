"""AWS Route Tools: declarative management of single VPC route entries."""

__version__ = "0.1.0"
