"""Agente de polling SNMP de tráfico de interfaces con envío a Mackerel."""

__version__ = "0.1.0"
