"""Server handler: dispatches JSON-lines requests to the session engine."""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from cogtrainer.config.settings import Settings
from cogtrainer.engine.controller import check_target_band
from cogtrainer.engine.exercise_loader import ExerciseDescriptor
from cogtrainer.engine.performance import classify_performance, performance_message
from cogtrainer.engine.sequencer import SessionSummary, SubmitResult, TrialSequencer
from cogtrainer.exercises.registry import ExerciseRegistry
from cogtrainer.state.sessions import SessionRecord, SessionStore

from .protocol import Notification

logger = logging.getLogger(__name__)


def _exercise_to_dict(descriptor: ExerciseDescriptor) -> dict:
    return {
        "id": descriptor.id,
        "name": descriptor.name,
        "domain": descriptor.domain,
        "adapter": descriptor.adapter,
        "direction": descriptor.direction.value,
        "granularity": descriptor.granularity.value,
        "initial": descriptor.initial,
        "min": descriptor.min_value,
        "max": descriptor.max_value,
        "step": descriptor.step,
        "defaultTrials": descriptor.default_trials,
        "dimensions": descriptor.dimensions,
    }


def _submit_to_dict(result: SubmitResult) -> dict:
    return {
        "correct": result.correct,
        "score": result.score,
        "difficultyChanged": result.difficulty_changed,
        "previousDifficulty": result.previous_difficulty,
        "currentDifficulty": result.current_difficulty,
        "blockAccuracy": result.block_accuracy,
        "sessionComplete": result.session_complete,
    }


def _summary_to_dict(summary: SessionSummary) -> dict:
    return {
        "exerciseId": summary.exercise_id,
        "totalTrials": summary.total_trials,
        "correctTrials": summary.correct_trials,
        "accuracy": summary.accuracy,
        "averageResponseTime": summary.average_response_time,
        "maxDifficultyReached": summary.max_difficulty_reached,
        "minDifficultyReached": summary.min_difficulty_reached,
        "finalDifficulty": summary.final_difficulty,
        "score": summary.score,
        "timeoutTrials": summary.timeout_trials,
        "thresholdDifficulty": summary.threshold_difficulty,
    }


def _record_to_dict(record: SessionRecord) -> dict:
    d = _summary_to_dict(record.summary)
    d.update(id=record.id, createdAt=record.created_at)
    return d


class ServerHandler:
    """Routes incoming requests to the sequencer and returns result dicts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
        registry: Optional[ExerciseRegistry] = None,
        store: Optional[SessionStore] = None,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.registry = registry or ExerciseRegistry(overrides=self.settings.exercises)
        self.store = store or SessionStore(
            db_path=self.settings.sessions_db,
            max_sessions=self.settings.max_sessions_stored,
        )
        self._sequencer: Optional[TrialSequencer] = None
        self._saved = False

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params") or {}

        handler_map = {
            "listExercises": self._list_exercises,
            "startSession": self._start_session,
            "nextTrial": self._next_trial,
            "submitTrial": self._submit_trial,
            "finalizeSession": self._finalize_session,
            "getHistory": self._get_history,
            "getSessionState": self._get_session_state,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    def _get_descriptor(self, exercise_id: str) -> ExerciseDescriptor:
        descriptor = self.registry.get_exercise(exercise_id)
        if descriptor is None:
            raise ValueError(f"Unknown exercise: {exercise_id}")
        return descriptor

    def _require_sequencer(self) -> TrialSequencer:
        if self._sequencer is None:
            raise ValueError("No session started")
        return self._sequencer

    async def _list_exercises(self, params: dict) -> dict:
        return {
            "exercises": [_exercise_to_dict(d) for d in self.registry.list_exercises()]
        }

    async def _start_session(self, params: dict) -> dict:
        descriptor = self._get_descriptor(params["exerciseId"])
        if params.get("resume"):
            descriptor = descriptor.with_overrides(
                initial=self.store.last_final_difficulty(descriptor.id)
            )
        trials = params.get("trials", descriptor.default_trials)
        seed = params.get("seed", self.settings.default_seed)

        # a new session replaces any unfinished one
        sequencer = TrialSequencer(rng=random.Random(seed))
        difficulty = sequencer.start_session(trials, descriptor)
        self._sequencer = sequencer
        self._saved = False
        return {
            "exerciseId": descriptor.id,
            "difficulty": difficulty,
            "totalTrials": trials,
        }

    async def _next_trial(self, params: dict) -> dict:
        spec = self._require_sequencer().next_trial_parameters()
        return {
            "trialIndex": spec.trial_index,
            "difficulty": spec.difficulty,
            "params": spec.params,
        }

    async def _submit_trial(self, params: dict) -> dict:
        sequencer = self._require_sequencer()
        result = sequencer.submit_trial_result(
            params.get("correct"),
            params.get("responseTimeMs"),
            dimensions=params.get("dimensions"),
            timed_out=params.get("timedOut", False),
        )
        if result.difficulty_changed:
            self._write_notification(Notification("difficultyChanged", {
                "from": result.previous_difficulty,
                "to": result.current_difficulty,
            }))
        if result.session_complete:
            self._write_notification(Notification("sessionComplete", {
                "exerciseId": sequencer.descriptor.id,
            }))
        return _submit_to_dict(result)

    async def _finalize_session(self, params: dict) -> dict:
        sequencer = self._require_sequencer()
        summary = sequencer.finalize_session()
        if not self._saved and summary.total_trials:
            self.store.save(summary)
            self._saved = True
            logger.info("Saved %s session: accuracy %.2f, final difficulty %s",
                        summary.exercise_id, summary.accuracy, summary.final_difficulty)

        result = _summary_to_dict(summary)
        result["performance"] = classify_performance(summary.accuracy).value
        result["message"] = performance_message(summary.accuracy, sequencer.rng)
        band = check_target_band(
            summary.accuracy, self.settings.target.min, self.settings.target.max
        )
        result["targetBand"] = {
            "min": self.settings.target.min,
            "max": self.settings.target.max,
            "inRange": band.in_target_range,
            "tooHigh": band.too_high,
            "tooLow": band.too_low,
        }
        return result

    async def _get_history(self, params: dict) -> dict:
        exercise_id = self._get_descriptor(params["exerciseId"]).id
        records = self.store.history(exercise_id, limit=params.get("limit"))
        return {
            "sessions": [_record_to_dict(r) for r in records],
            "aggregate": self.store.aggregate(exercise_id),
        }

    async def _get_session_state(self, params: dict) -> dict:
        if self._sequencer is None:
            return {"state": "idle"}
        sequencer = self._sequencer
        progress = sequencer.progress
        return {
            "state": sequencer.state.value,
            "exerciseId": progress.descriptor.id,
            "trialsCompleted": progress.trials_completed,
            "totalTrials": progress.total_trials,
            "progress": progress.progress_fraction,
            "score": progress.score,
            "difficulty": sequencer.current_difficulty(),
        }
