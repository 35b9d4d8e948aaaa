from forgevcf.core_logic.constants import VERSION

__version__ = VERSION
