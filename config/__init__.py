# DEPENDENCIES
from .settings import settings
from .legal_rules import ClauseType
from .legal_rules import LegalRules
from .model_config import ModelConfig
from .legal_rules import InstrumentType


__all__ = ['settings',
           'ClauseType',
           'LegalRules',
           'ModelConfig',
           'InstrumentType',
          ]
