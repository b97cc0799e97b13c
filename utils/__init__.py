# DEPENDENCIES
from .text_processor import TextProcessor
from .validators import ClauseValidator
from .logger import StatuteAnalyzerLogger
from .exceptions import StatuteAnalyzerError


__all__ = ['TextProcessor',
           'ClauseValidator',
           'StatuteAnalyzerError',
           'StatuteAnalyzerLogger',
          ]
