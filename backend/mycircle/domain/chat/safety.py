"""Content safety checks applied to chat messages before persistence."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

import httpx

from mycircle.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

DEFAULT_BLOCKLIST = (
	"abuse",
	"harass",
	"hate",
	"violence",
	"stupid",
	"idiot",
	"damn",
	"hell",
	"ass",
	"bitch",
	"fuck",
	"shit",
)


@dataclass(slots=True, frozen=True)
class SafetyVerdict:
	safe: bool
	reason: Optional[str] = None


SAFE = SafetyVerdict(safe=True)


class SafetyChecker(Protocol):
	async def check(self, text: str) -> SafetyVerdict:
		...


class ProfanityFilter(SafetyChecker):
	"""Whole-word blocklist match, so "class" or "hello" never trip "ass" / "hell"."""

	def __init__(self, words: Iterable[str] = DEFAULT_BLOCKLIST) -> None:
		alternation = "|".join(re.escape(word) for word in sorted(set(words), key=len, reverse=True))
		self._pattern = re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)

	async def check(self, text: str) -> SafetyVerdict:
		if self._pattern.search(text or ""):
			obs_metrics.inc_safety_verdict("profanity", "unsafe")
			return SafetyVerdict(safe=False, reason="inappropriate language")
		obs_metrics.inc_safety_verdict("profanity", "safe")
		return SAFE


class RemoteSafetyChecker(SafetyChecker):
	"""Moderation endpoint returning `{"safe": bool, "reason": str?}`.

	Transport errors and malformed replies fail open.
	"""

	def __init__(self, endpoint: str, *, timeout: float = 3.0, client: Optional[httpx.AsyncClient] = None) -> None:
		self._endpoint = endpoint
		self._client = client or httpx.AsyncClient(timeout=timeout)

	async def check(self, text: str) -> SafetyVerdict:
		try:
			response = await self._client.post(self._endpoint, json={"text": text})
			response.raise_for_status()
			data = response.json()
		except (httpx.HTTPError, ValueError):
			obs_metrics.inc_safety_verdict("remote", "error")
			LOGGER.warning("remote safety check failed; allowing message", exc_info=True)
			return SAFE
		if not isinstance(data, dict) or data.get("safe", True):
			obs_metrics.inc_safety_verdict("remote", "safe")
			return SAFE
		obs_metrics.inc_safety_verdict("remote", "unsafe")
		return SafetyVerdict(safe=False, reason=str(data.get("reason") or "content violation"))

	async def aclose(self) -> None:
		await self._client.aclose()


class ChainedSafetyChecker(SafetyChecker):
	"""Run checkers in order; the first unsafe verdict wins."""

	def __init__(self, checkers: Sequence[SafetyChecker]) -> None:
		self._checkers = tuple(checkers)

	async def check(self, text: str) -> SafetyVerdict:
		for checker in self._checkers:
			verdict = await checker.check(text)
			if not verdict.safe:
				return verdict
		return SAFE


def build_checker(endpoint: Optional[str] = None, *, timeout: float = 3.0) -> SafetyChecker:
	checkers: list[SafetyChecker] = [ProfanityFilter()]
	if endpoint:
		checkers.append(RemoteSafetyChecker(endpoint, timeout=timeout))
	return ChainedSafetyChecker(checkers)
