# DEPENDENCIES
import sys
from typing import Any
from typing import List
from typing import Dict
from pathlib import Path
from typing import Optional
from dataclasses import field
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from config.settings import settings
from model_manager.llm_manager import LLMManager
from model_manager.llm_manager import LLMProvider
from utils.logger import StatuteAnalyzerLogger


CONFLICT_SCHEMA = """
{
    "explanation": "string - why the two provisions may conflict",
    "legal_implications": ["string - consequence 1", "string - consequence 2"],
    "resolution_suggestions": ["string - suggestion 1", "string - suggestion 2"],
    "severity_factors": ["string - factor 1"],
    "legal_precedent": "string - a court decision or principle (e.g. lex superior) that governs the conflict, or null"
}
"""

CHANGE_SCHEMA   = """
{
    "explanation": "string - what changed and why it matters legally",
    "legal_implication": "string - the main legal consequence of the change"
}
"""


@dataclass
class ConflictExplanation:
    """
    Structured enrichment for one conflict flag
    """
    explanation            : str
    legal_implications     : List[str]     = field(default_factory = list)
    resolution_suggestions : List[str]     = field(default_factory = list)
    severity_factors       : List[str]     = field(default_factory = list)
    legal_precedent        : Optional[str] = None


    def to_dict(self) -> Dict[str, Any]:
        return {"explanation"            : self.explanation,
                "legal_implications"     : self.legal_implications,
                "resolution_suggestions" : self.resolution_suggestions,
                "severity_factors"       : self.severity_factors,
                "legal_precedent"        : self.legal_precedent,
               }


@dataclass
class ChangeExplanation:
    explanation       : str
    legal_implication : Optional[str] = None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []

    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]

    return []


class ExplanationGenerator:
    """
    Optional LLM enrichment of conflict flags and document changes

    Every method raises on failure; callers fall back to their templated text
    """
    def __init__(self, llm_manager: Optional[LLMManager] = None, provider: Optional[LLMProvider] = None, max_excerpt_chars: int = 1500,
                 fallback_providers: Optional[List[LLMProvider]] = None):
        """
        Initialize explanation generator

        Arguments:
        ----------
            llm_manager        { LLMManager }  : Text generation backend (default: new LLMManager)

            provider           { LLMProvider } : Provider override

            max_excerpt_chars  { int }         : Clause text cap per prompt

            fallback_providers { list }        : Providers tried in order when the first one fails (default: settings.LLM_FALLBACK_PROVIDERS)
        """
        self.llm_manager        = llm_manager or LLMManager()
        self.provider           = provider
        self.max_excerpt_chars  = max_excerpt_chars
        self.fallback_providers = list(fallback_providers) if fallback_providers is not None else [LLMProvider(name) for name in settings.LLM_FALLBACK_PROVIDERS]

        log_info("ExplanationGenerator initialized",
                 provider           = (provider or self.llm_manager.default_provider).value,
                 fallback_providers = [fallback.value for fallback in self.fallback_providers],
                )


    def _clip(self, text: str) -> str:
        return (text or "")[:self.max_excerpt_chars]


    @StatuteAnalyzerLogger.log_execution_time("explain_conflict")
    def explain_conflict(self, input_text: str, matched_text: str, matched_title: str, conflict_type: str) -> ConflictExplanation:
        """
        Explain why an input clause may conflict with an existing provision

        Arguments:
        ----------
            input_text    { str } : Clause from the document under review

            matched_text  { str } : Clause found in the corpus

            matched_title { str } : Title of the corpus document

            conflict_type { str } : Classified conflict type

        Returns:
        --------
            { ConflictExplanation } : Parsed enrichment

        Raises:
        -------
            ValueError              : If generation failed or the reply has no explanation
        """
        prompt = f"""Analyze the potential legal conflict between these two Indonesian statutory provisions.

PROVISION UNDER REVIEW:
{self._clip(input_text)}

EXISTING PROVISION ({matched_title}):
{self._clip(matched_text)}

DETECTED CONFLICT TYPE: {conflict_type}

Explain in Indonesian why these provisions may conflict, the legal implications,
how the conflict could be resolved, which factors drive its severity and any legal precedent
or principle (such as lex superior or lex specialis) that settles it.
"""
        parsed      = self.llm_manager.generate_structured_json(prompt             = prompt,
                                                                schema_description = CONFLICT_SCHEMA,
                                                                provider           = self.provider,
                                                                fallback_providers = self.fallback_providers,
                                                               )

        explanation = str(parsed.get("explanation") or "").strip()

        if not explanation:
            raise ValueError("LLM response did not contain an explanation")

        precedent   = parsed.get("legal_precedent")

        return ConflictExplanation(explanation            = explanation,
                                   legal_implications     = _string_list(parsed.get("legal_implications")),
                                   resolution_suggestions = _string_list(parsed.get("resolution_suggestions")),
                                   severity_factors       = _string_list(parsed.get("severity_factors")),
                                   legal_precedent        = str(precedent).strip() if precedent else None,
                                  )


    @StatuteAnalyzerLogger.log_execution_time("explain_change")
    def explain_change(self, old_text: str, new_text: str, clause_ref: Optional[str] = None) -> ChangeExplanation:
        """
        Explain a modification between two versions of a clause
        """
        prompt      = f"""Compare two versions of the same statutory clause{f' ({clause_ref})' if clause_ref else ''}.

OLD VERSION:
{self._clip(old_text)}

NEW VERSION:
{self._clip(new_text)}

Describe briefly what changed and its main legal consequence.
"""
        parsed      = self.llm_manager.generate_structured_json(prompt             = prompt,
                                                                schema_description = CHANGE_SCHEMA,
                                                                provider           = self.provider,
                                                                fallback_providers = self.fallback_providers,
                                                               )

        explanation = str(parsed.get("explanation") or "").strip()

        if not explanation:
            raise ValueError("LLM response did not contain an explanation")

        implication = parsed.get("legal_implication")

        return ChangeExplanation(explanation       = explanation,
                                 legal_implication = str(implication).strip() if implication else None,
                                )
