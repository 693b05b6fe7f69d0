"""
Learner-facing remark templates keyed by average label.
"""

from typing import Dict

from ..models import AverageLabel, Language


REMARKS: Dict[Language, Dict[AverageLabel, str]] = {
    Language.ENGLISH: {
        AverageLabel.EXCELLENT: "Excellent: outstanding delivery and pacing!",
        AverageLabel.VERY_GOOD: "Very Good: just a little polish needed.",
        AverageLabel.GOOD: "Good: keep practicing for smoother speech.",
        AverageLabel.FAIR: "Fair: focus on clarity and confidence.",
        AverageLabel.POOR: "Poor: let's build clarity and pace together.",
    },
    Language.FILIPINO: {
        AverageLabel.EXCELLENT: "Magaling! Napakagaling ng iyong pagbigkas at fluency!",
        AverageLabel.VERY_GOOD: "Magaling: kaunting pagsasanay pa sa pagbigkas at fluency.",
        AverageLabel.GOOD: "Katamtaman: kailangan ng pagsasanay sa mga tunog at bawasan ang paghinto.",
        AverageLabel.FAIR: "Katamtaman: kailangan ng pagsasanay sa mga tunog at bawasan ang paghinto.",
        AverageLabel.POOR: "Kailangan ng mas maraming pagsasanay: pagbutihin ang kalinawan at bilis.",
    },
}


def remarks_for(label: AverageLabel, language: Language = Language.ENGLISH) -> str:
    """Return the remark template for a label in the card's language."""
    return REMARKS[language][label]
