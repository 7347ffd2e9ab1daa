"""Static table of remote evaluation templates.

Each template pairs the service-side evaluation name with the numeric
identifier used as the key of a request's ``config`` block.  Templates
can be looked up either by their class-style name (``"Toxicity"``) or by
their evaluation name (``"toxicity"``).
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class EvalTemplate:
    """A remote evaluation template.

    Attributes
    ----------
    name:
        Class-style name, e.g. ``"PromptInjection"``.
    eval_name:
        Service-side evaluation name, e.g. ``"prompt_injection"``.
    eval_id:
        Service-side identifier, e.g. ``"18"``.
    """

    name: str
    eval_name: str
    eval_id: str


_TEMPLATES: tuple[EvalTemplate, ...] = (
    EvalTemplate("ConversationCoherence", "conversation_coherence", "1"),
    EvalTemplate("ConversationResolution", "conversation_resolution", "2"),
    EvalTemplate("ContentModeration", "content_moderation", "4"),
    EvalTemplate("ContextAdherence", "context_adherence", "5"),
    EvalTemplate("ContextRelevance", "context_relevance", "9"),
    EvalTemplate("Completeness", "completeness", "10"),
    EvalTemplate("ChunkAttribution", "chunk_attribution", "11"),
    EvalTemplate("ChunkUtilization", "chunk_utilization", "12"),
    EvalTemplate("PII", "pii", "14"),
    EvalTemplate("Toxicity", "toxicity", "15"),
    EvalTemplate("Tone", "tone", "16"),
    EvalTemplate("Sexist", "sexist", "17"),
    EvalTemplate("PromptInjection", "prompt_injection", "18"),
    EvalTemplate("NotGibberishText", "not_gibberish_text", "19"),
    EvalTemplate("SafeForWorkText", "safe_for_work_text", "20"),
    EvalTemplate("PromptAdherence", "prompt_adherence", "65"),
    EvalTemplate("DataPrivacyCompliance", "data_privacy_compliance", "22"),
    EvalTemplate("IsJson", "is_json", "23"),
    EvalTemplate("OneLine", "one_line", "38"),
    EvalTemplate("ContainsValidLink", "contains_valid_link", "39"),
    EvalTemplate("IsEmail", "is_email", "40"),
    EvalTemplate("NoValidLinks", "no_valid_links", "42"),
    EvalTemplate("Groundedness", "groundedness", "47"),
    EvalTemplate("Ranking", "eval_ranking", "61"),
    EvalTemplate("SummaryQuality", "summary_quality", "64"),
    EvalTemplate("FactualAccuracy", "factual_accuracy", "66"),
    EvalTemplate("TranslationAccuracy", "translation_accuracy", "67"),
    EvalTemplate("CulturalSensitivity", "cultural_sensitivity", "68"),
    EvalTemplate("BiasDetection", "bias_detection", "69"),
    EvalTemplate("LLMFunctionCalling", "llm_function_calling", "72"),
    EvalTemplate("AudioTranscriptionEvaluator", "audio_transcription", "73"),
    EvalTemplate("AudioQualityEvaluator", "audio_quality", "75"),
    EvalTemplate("NoRacialBias", "no_racial_bias", "77"),
    EvalTemplate("NoGenderBias", "no_gender_bias", "78"),
    EvalTemplate("NoAgeBias", "no_age_bias", "79"),
    EvalTemplate("NoOpenAIReference", "no_openai_reference", "80"),
    EvalTemplate("NoApologies", "no_apologies", "81"),
    EvalTemplate("IsPolite", "is_polite", "82"),
    EvalTemplate("IsConcise", "is_concise", "83"),
    EvalTemplate("IsHelpful", "is_helpful", "84"),
    EvalTemplate("IsCode", "is_code", "85"),
    EvalTemplate("IsCSV", "is_csv", "86"),
    EvalTemplate("FuzzyMatch", "fuzzy_match", "87"),
    EvalTemplate("AnswerRefusal", "answer_refusal", "88"),
    EvalTemplate("DetectHallucinationMissingInfo", "detect_hallucination_missing_info", "89"),
    EvalTemplate("NoHarmfulTherapeuticGuidance", "no_harmful_therapeutic_guidance", "90"),
    EvalTemplate("ClinicallyInappropriateTone", "clinically_inappropriate_tone", "91"),
    EvalTemplate("IsHarmfulAdvice", "is_harmful_advice", "92"),
    EvalTemplate("ContentSafety", "content_safety_violation", "93"),
    EvalTemplate("IsGoodSummary", "is_good_summary", "94"),
    EvalTemplate("IsFactuallyConsistent", "is_factually_consistent", "95"),
    EvalTemplate("IsCompliant", "is_compliant", "96"),
    EvalTemplate("IsInformalTone", "is_informal_tone", "97"),
    EvalTemplate("EvaluateFunctionCalling", "evaluate_function_calling", "98"),
    EvalTemplate("TaskCompletion", "task_completion", "99"),
    EvalTemplate("CaptionHallucination", "caption_hallucination", "100"),
    EvalTemplate("BleuScore", "bleu_score", "101"),
)

TEMPLATES: MappingProxyType[str, EvalTemplate] = MappingProxyType(
    {t.name: t for t in _TEMPLATES}
)
"""Templates keyed by class-style name."""

_BY_EVAL_NAME: MappingProxyType[str, EvalTemplate] = MappingProxyType(
    {t.eval_name: t for t in _TEMPLATES}
)


def get_template(name: str) -> EvalTemplate | None:
    """Return the template called *name* (class-style or eval name)."""
    return TEMPLATES.get(name) or _BY_EVAL_NAME.get(name)
