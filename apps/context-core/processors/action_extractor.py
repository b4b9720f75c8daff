"""
ActionExtractor: deterministic extraction of explicit actions from transcripts

Only stated actions are captured (markers, commitments, deadlines, follow-ups).
No inference and no scoring: the same input always yields the same actions in
the same order.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple
from models.action import ExtractedAction, ExtractionStats, MatchType
from utils.text_cleaner import TextCleaner
import logging

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 10
MIN_ACTION_LENGTH = 4
CONTEXT_MAX_CHARS = 200
PROVIDED_LIST_CONTEXT = "provided list"

_WEEKDAY = r"(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"
_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
_WHEN = (
    rf"(?:{_WEEKDAY}|tomorrow|today|tonight|next week|end of (?:the )?(?:day|week|month)"
    rf"|eod|eow|eom|\d{{1,2}}[/-]\d{{1,2}}(?:[/-]\d{{2,4}})?|{_MONTH}\s+\d{{1,2}}(?:st|nd|rd|th)?)"
)

DEADLINE = re.compile(rf"\b(?:by|before)\s+(?P<when>{_WHEN})\b", re.IGNORECASE)
WITHIN = re.compile(r"\bwithin\s+(?P<when>\d+\s+(?:hours?|days?|weeks?))\b", re.IGNORECASE)

_MARKER_WORDS = r"(?:action items?|to-?do|task|next steps?)"
_COMMITMENT_PHRASES = (
    r"(?:i['’]ll|i will|i['’]m going to|i am going to"
    r"|we['’]ll|we will|we['’]re going to|let me(?!\s+know))"
)
_FOLLOW_UP_PHRASES = (
    r"(?:follow[- ]?up with|reach out to|get back to|touch base with|check in with"
    r"|schedule (?:a )?(?:call|meeting|sync) with)"
)

MARKER_WORD = re.compile(rf"^{_MARKER_WORDS}$", re.IGNORECASE)
MARKER_LEAD = re.compile(rf"^{_MARKER_WORDS}\s*:\s*", re.IGNORECASE)
COMMITMENT_LEAD = re.compile(rf"\b{_COMMITMENT_PHRASES}(?:\s+|$)", re.IGNORECASE)
FOLLOW_UP_LEAD = re.compile(rf"\b{_FOLLOW_UP_PHRASES}\s", re.IGNORECASE)
PLEASE_LEAD = re.compile(r"^please\s+", re.IGNORECASE)

SPEAKER_COLON = re.compile(r"^([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\s*:\s*")
SPEAKER_BRACKET = re.compile(r"^\[([^\]]+)\]\s*")
SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
LINE_BREAK = re.compile(r"[\r\n]+")

_TRAILING = " \t,;:-.!?"


@dataclass(frozen=True)
class PatternRule:
    """One extraction rule: a regex and the kind of action its match produces"""
    name: str
    match_type: MatchType
    pattern: Pattern


# Evaluated in this order against every sentence.
RULES: Tuple[PatternRule, ...] = (
    PatternRule(
        "explicit_marker",
        MatchType.ACTION_ITEM,
        re.compile(rf"^{_MARKER_WORDS}\s*:\s*(?P<text>.+)$", re.IGNORECASE),
    ),
    PatternRule(
        "first_person_commitment",
        MatchType.COMMITMENT,
        re.compile(r"\b(?:i['’]ll|i will|i['’]m going to|i am going to)\s+(?P<text>.+)$", re.IGNORECASE),
    ),
    PatternRule(
        "team_commitment",
        MatchType.COMMITMENT,
        re.compile(r"\b(?:we['’]ll|we will|we['’]re going to)\s+(?P<text>.+)$", re.IGNORECASE),
    ),
    PatternRule(
        "offer",
        MatchType.COMMITMENT,
        re.compile(r"\blet me(?!\s+know)\s+(?P<text>.+)$", re.IGNORECASE),
    ),
    PatternRule("deadline", MatchType.TIME_BOUND, DEADLINE),
    PatternRule("within_timeframe", MatchType.TIME_BOUND, WITHIN),
    PatternRule(
        "follow_up",
        MatchType.FOLLOW_UP,
        re.compile(rf"\b{_FOLLOW_UP_PHRASES}\s+(?P<party>[^.,;!?]+)", re.IGNORECASE),
    ),
)

Capture = Optional[Tuple[str, Optional[str]]]


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip(_TRAILING)


def _find_time(text: str):
    """First deadline or timeframe expression in text"""
    matches = [m for m in (DEADLINE.search(text), WITHIN.search(text)) if m]
    if not matches:
        return None
    return min(matches, key=lambda m: m.start())


def _strip_lead_in(text: str) -> str:
    """Drop a marker, a commitment phrase or 'please' from the front of an action"""
    text = MARKER_LEAD.sub("", text.strip())
    commitment = COMMITMENT_LEAD.search(text)
    if commitment:
        text = text[commitment.end():]
    return PLEASE_LEAD.sub("", text.strip())


def _capture_marker(match, sentence: str) -> Capture:
    return _clean(match.group("text")), None


def _capture_commitment(match, sentence: str) -> Capture:
    predicate = match.group("text")
    deadline = _find_time(predicate)
    if deadline is None:
        return _clean(predicate), None
    return _clean(predicate[:deadline.start()]), deadline.group("when")


def _capture_time_bound(match, sentence: str) -> Capture:
    before = _clean(_strip_lead_in(sentence[:match.start()]))
    # A deadline on a follow-up belongs to the follow-up action
    if FOLLOW_UP_LEAD.search(before + " "):
        return None
    if before:
        return before, match.group("when")
    after = _clean(PLEASE_LEAD.sub("", sentence[match.end():].strip(_TRAILING)))
    return after, match.group("when")


def _capture_follow_up(match, sentence: str) -> Capture:
    party = match.group("party")
    deadline = _find_time(party)
    when = None
    if deadline is not None:
        party, when = party[:deadline.start()], deadline.group("when")
    party = _clean(party)
    if not party:
        return None
    return f"Follow up with {party}", when


CAPTURES: Dict[MatchType, Callable] = {
    MatchType.ACTION_ITEM: _capture_marker,
    MatchType.COMMITMENT: _capture_commitment,
    MatchType.TIME_BOUND: _capture_time_bound,
    MatchType.FOLLOW_UP: _capture_follow_up,
}


def split_speaker(line: str) -> Tuple[Optional[str], str]:
    """Split 'Jane: text' or '[Jane] text' into (speaker, text)"""
    bracket = SPEAKER_BRACKET.match(line)
    if bracket:
        return bracket.group(1).strip(), line[bracket.end():]

    colon = SPEAKER_COLON.match(line)
    if colon and not MARKER_WORD.match(colon.group(1)):
        return colon.group(1), line[colon.end():]

    return None, line


def person_references(text: str, attendee_ids: Iterable[str]) -> List[str]:
    """Attendees whose name (email local part) or full email appears in text"""
    lowered = text.lower()
    found = []
    for attendee in attendee_ids:
        if not attendee or attendee in found:
            continue
        name = TextCleaner.email_as_name(attendee)
        if (name and name in lowered) or attendee.lower() in lowered:
            found.append(attendee)
    return found


class ActionExtractor:
    """Applies an ordered rule set to transcript text"""

    def __init__(self, rules: Sequence[PatternRule] = RULES):
        self.rules = tuple(rules)

    def extract(
        self,
        text: str,
        preparsed_items: Iterable[str] = (),
        attendee_ids: Iterable[str] = (),
    ) -> List[ExtractedAction]:
        """Extract explicit actions

        Args:
            text: Full transcript content
            preparsed_items: Action items already listed by the transcription service
            attendee_ids: Attendee emails, used to tag referenced people

        Returns:
            Actions in discovery order, de-duplicated case-insensitively by text
        """
        attendee_ids = [a for a in attendee_ids or [] if a]
        actions: List[ExtractedAction] = []
        seen = set()

        def keep(action: ExtractedAction):
            key = action.text.lower()
            if len(action.text) < MIN_ACTION_LENGTH or key in seen:
                return
            seen.add(key)
            actions.append(action)

        for item in preparsed_items or []:
            item_text = TextCleaner.strip_bullet(item)
            keep(ExtractedAction(
                text=item_text,
                related_person_ids=person_references(item_text, attendee_ids),
                match_type=MatchType.ACTION_ITEM,
                source_context=PROVIDED_LIST_CONTEXT,
            ))

        lines = [line.strip() for line in LINE_BREAK.split(text or "")]
        for index, line in enumerate(lines):
            if len(line) < MIN_LINE_LENGTH:
                continue

            context = " ".join(l for l in lines[max(0, index - 1):index + 2] if l)[:CONTEXT_MAX_CHARS]
            speaker, body = split_speaker(line)

            for sentence in SENTENCE_BREAK.split(body):
                for action in self._extract_sentence(sentence.strip(), speaker, context, attendee_ids):
                    keep(action)

        logger.debug(f"Extracted {len(actions)} actions")
        return actions

    def _extract_sentence(
        self,
        sentence: str,
        speaker: Optional[str],
        context: str,
        attendee_ids: List[str],
    ) -> List[ExtractedAction]:
        found = []
        if not sentence:
            return found

        for rule in self.rules:
            match = rule.pattern.search(sentence)
            if not match:
                continue
            captured = CAPTURES[rule.match_type](match, sentence)
            if not captured or not captured[0]:
                continue
            action_text, mentioned_time = captured
            found.append(ExtractedAction(
                text=action_text,
                mentioned_by=speaker,
                mentioned_time=mentioned_time,
                related_person_ids=person_references(action_text, attendee_ids),
                match_type=rule.match_type,
                source_context=context,
            ))
        return found


_default_extractor = ActionExtractor()


def extract_actions(
    text: str,
    preparsed_items: Iterable[str] = (),
    attendee_ids: Iterable[str] = (),
) -> List[ExtractedAction]:
    return _default_extractor.extract(text, preparsed_items, attendee_ids)


def compute_extraction_stats(actions: List[ExtractedAction]) -> ExtractionStats:
    counts = {match_type: 0 for match_type in MatchType}
    for action in actions:
        counts[action.match_type] += 1
    return ExtractionStats(
        total_actions=len(actions),
        action_items=counts[MatchType.ACTION_ITEM],
        commitments=counts[MatchType.COMMITMENT],
        time_bound=counts[MatchType.TIME_BOUND],
        follow_ups=counts[MatchType.FOLLOW_UP],
    )
