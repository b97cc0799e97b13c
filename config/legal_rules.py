# DEPENDENCIES
import re
from enum import Enum
from typing import Dict
from typing import List
from typing import Tuple
from typing import Optional


class ClauseType(Enum):
    """
    Closed hierarchy of statutory clause types
    """
    CHAPTER     = "chapter"
    SECTION     = "section"
    SUB_SECTION = "sub-section"
    ARTICLE     = "article"
    PARAGRAPH   = "paragraph"
    POINT       = "point"
    ITEM        = "item"
    GENERAL     = "general"


    @classmethod
    def normalize(cls, value) -> "ClauseType":
        """
        Map a free-form clause-type tag (English or Indonesian) onto the enum; unknown values become GENERAL
        """
        if isinstance(value, ClauseType):
            return value

        if value is None:
            return cls.GENERAL

        key = str(value).strip().lower().replace("_", "-")

        return CLAUSE_TYPE_ALIASES.get(key, cls.GENERAL)


CLAUSE_TYPE_ALIASES = {"bab"         : ClauseType.CHAPTER,
                       "chapter"     : ClauseType.CHAPTER,
                       "bagian"      : ClauseType.SECTION,
                       "section"     : ClauseType.SECTION,
                       "paragraf"    : ClauseType.SUB_SECTION,
                       "sub-section" : ClauseType.SUB_SECTION,
                       "subsection"  : ClauseType.SUB_SECTION,
                       "pasal"       : ClauseType.ARTICLE,
                       "article"     : ClauseType.ARTICLE,
                       "ayat"        : ClauseType.PARAGRAPH,
                       "paragraph"   : ClauseType.PARAGRAPH,
                       "huruf"       : ClauseType.POINT,
                       "point"       : ClauseType.POINT,
                       "angka"       : ClauseType.ITEM,
                       "item"        : ClauseType.ITEM,
                       "number"      : ClauseType.ITEM,
                       "general"     : ClauseType.GENERAL,
                       "umum"        : ClauseType.GENERAL,
                      }


class InstrumentType(Enum):
    """
    Indonesian legal instrument types recognised in corpus document titles
    """
    STATUTE                 = "undang-undang"
    GOVERNMENT_REGULATION   = "peraturan-pemerintah"
    PRESIDENTIAL_REGULATION = "peraturan-presiden"
    PRESIDENTIAL_DECREE     = "keputusan-presiden"
    MINISTERIAL_REGULATION  = "peraturan-menteri"
    REGIONAL_REGULATION     = "peraturan-daerah"
    OTHER                   = "lainnya"


class LegalRules:
    """
    Weight tables and lexicons for significance scoring and conflict classification
    """
    # Legal hierarchy weights used for change significance
    HIERARCHY_WEIGHTS         = {ClauseType.CHAPTER     : 5,
                                 ClauseType.ARTICLE     : 5,
                                 ClauseType.SECTION     : 4,
                                 ClauseType.SUB_SECTION : 4,
                                 ClauseType.PARAGRAPH   : 4,
                                 ClauseType.POINT       : 2,
                                 ClauseType.ITEM        : 2,
                                 ClauseType.GENERAL     : 1,
                                }

    # Multipliers per change kind ("modified" is 1 + (1 - similarity))
    CHANGE_TYPE_FACTORS       = {"deleted" : 1.2,
                                 "added"   : 1.1,
                                 "moved"   : 0.8,
                                }

    MIN_SIGNIFICANCE          = 1
    MAX_SIGNIFICANCE          = 5

    # Significance bands for statistics
    SIGNIFICANCE_BANDS        = {"critical" : (5, 5),
                                 "major"    : (4, 4),
                                 "minor"    : (2, 3),
                                 "trivial"  : (1, 1),
                                }

    # Antonymous legal-modal pairs, checked in both directions
    MODAL_OPPOSITES           = [(r"(?<!tidak )\bdilarang\b",       r"\b(?:diperbolehkan|diizinkan|dibolehkan|tidak dilarang)\b"),
                                 (r"(?<!tidak )\bwajib\b",          r"\b(?:tidak wajib|opsional)\b"),
                                 (r"(?<!tidak )\bdiwajibkan\b",     r"\btidak diwajibkan\b"),
                                 (r"(?<!tidak )\bharus\b",          r"\b(?:tidak harus|tidak perlu)\b"),
                                 (r"(?<!tidak )\bberhak\b",         r"\btidak berhak\b"),
                                 (r"(?<!tidak )\bboleh\b",          r"\btidak boleh\b"),
                                 (r"(?<!not )\bprohibited\b",       r"\b(?:permitted|allowed|not prohibited)\b"),
                                 (r"\b(?:shall|must)\b(?! not)",    r"\b(?:shall not|must not|may not)\b"),
                                 (r"\bmandatory\b",                 r"\boptional\b"),
                                ]

    PROCEDURAL_KEYWORDS       = ["prosedur",
                                 "tata cara",
                                 "mekanisme",
                                 "persyaratan",
                                 "pendaftaran",
                                 "permohonan",
                                 "perizinan",
                                 "jangka waktu",
                                 "tahapan",
                                 "procedure",
                                 "registration",
                                 "application",
                                 "requirement",
                                ]

    # Confidence multipliers
    CLAUSE_TYPE_CONFIDENCE    = {ClauseType.ARTICLE   : 1.2,
                                 ClauseType.PARAGRAPH : 1.1,
                                }
    NATIONAL_JURISDICTION     = 1.3
    PRIMARY_STATUTE           = 1.2

    NATIONAL_JURISDICTIONS    = ("national", "nasional")
    PRIMARY_STATUTE_TYPES     = ("statute", "law", "undang-undang", "uu")

    # Severity thresholds: (severity, strict lower bound on confidence), evaluated in order; last entry is the default
    SEVERITY_THRESHOLDS       = {"contradiction" : [("critical", 0.90), ("high", 0.80), ("medium", None)],
                                 "overlap"       : [("high", 0.95), ("medium", 0.85), ("low", None)],
                                 "inconsistency" : [("high", 0.90), ("medium", 0.75), ("low", None)],
                                 "gap"           : [("high", 0.85), ("medium", 0.70), ("low", None)],
                                }

    SEVERITY_WEIGHTS          = {"critical" : 4,
                                 "high"     : 3,
                                 "medium"   : 2,
                                 "low"      : 1,
                                }

    # Title keyword patterns, evaluated in order (more specific first)
    INSTRUMENT_PATTERNS       = [(InstrumentType.GOVERNMENT_REGULATION,   r"\bperaturan pemerintah\b|\bpp\b"),
                                 (InstrumentType.PRESIDENTIAL_REGULATION, r"\bperaturan presiden\b|\bperpres\b"),
                                 (InstrumentType.PRESIDENTIAL_DECREE,     r"\bkeputusan presiden\b|\bkeppres\b"),
                                 (InstrumentType.MINISTERIAL_REGULATION,  r"\bperaturan menteri\b|\bpermen\w*\b"),
                                 (InstrumentType.REGIONAL_REGULATION,     r"\bperaturan daerah\b|\bperda\b"),
                                 (InstrumentType.STATUTE,                 r"\bundang[- ]undang\b|\buu\b"),
                                ]

    ISSUING_AUTHORITIES       = {InstrumentType.STATUTE                 : "DPR RI dan Presiden",
                                 InstrumentType.GOVERNMENT_REGULATION   : "Presiden RI",
                                 InstrumentType.PRESIDENTIAL_REGULATION : "Presiden RI",
                                 InstrumentType.PRESIDENTIAL_DECREE     : "Presiden RI",
                                 InstrumentType.MINISTERIAL_REGULATION  : "Menteri",
                                 InstrumentType.REGIONAL_REGULATION     : "Pemerintah Daerah",
                                 InstrumentType.OTHER                   : "Tidak diketahui",
                                }

    NUMBER_YEAR_PATTERNS      = [r"\b(?:no\.?|nomor)\s*(\d+[a-z]?)\s*tahun\s*(\d{4})\b",
                                 r"\b(\d+[a-z]?)\s*/\s*(\d{4})\b",
                                ]


    @classmethod
    def hierarchy_weight(cls, clause_type: ClauseType) -> int:
        return cls.HIERARCHY_WEIGHTS.get(ClauseType.normalize(clause_type), cls.HIERARCHY_WEIGHTS[ClauseType.GENERAL])


    @classmethod
    def severity_for(cls, conflict_type: str, confidence: float) -> str:
        """
        Look up severity from the threshold table for a conflict type and confidence
        """
        table = cls.SEVERITY_THRESHOLDS.get(conflict_type, cls.SEVERITY_THRESHOLDS["overlap"])

        for severity, bound in table:
            if (bound is None) or (confidence > bound):
                return severity

        return table[-1][0]


    @classmethod
    def has_modal_contradiction(cls, first_text: str, second_text: str) -> bool:
        """
        True when one text carries a modal term and the other carries its antonym (either direction)
        """
        first  = first_text.lower()
        second = second_text.lower()

        for positive, negative in cls.MODAL_OPPOSITES:
            if re.search(positive, first) and re.search(negative, second):
                return True

            if re.search(negative, first) and re.search(positive, second):
                return True

        return False


    @classmethod
    def procedural_keywords_in(cls, text: str) -> List[str]:
        lowered = text.lower()

        return [keyword for keyword in cls.PROCEDURAL_KEYWORDS if keyword in lowered]


    @classmethod
    def classify_instrument(cls, title: str) -> InstrumentType:
        lowered = (title or "").lower()

        for instrument_type, pattern in cls.INSTRUMENT_PATTERNS:
            if re.search(pattern, lowered):
                return instrument_type

        return InstrumentType.OTHER


    @classmethod
    def extract_number_and_year(cls, title: str) -> Tuple[Optional[str], Optional[int]]:
        lowered = (title or "").lower()

        for pattern in cls.NUMBER_YEAR_PATTERNS:
            match = re.search(pattern, lowered)

            if match:
                return match.group(1).upper(), int(match.group(2))

        return None, None
