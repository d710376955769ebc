import queue
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from nurikabe_model import Board, PuzzleDef, board_from_text
from nurikabe_progress import ProgressChannel
from nurikabe_rules import NurikabeSolver

WORKER_POLL_SECONDS = 0.05


@dataclass
class WorkerCommand:
    kind: str
    payload: Optional[Dict[str, Any]] = None


@dataclass
class WorkerResult:
    kind: str
    payload: Dict[str, Any]


class SolverWorker:
    """Runs a solver on a private board in a daemon thread.

    Commands: "load" (payload "text" or "puzzle"), "step", "solve"
    (payload "make_guesses", "skip_expensive") and "stop". Results carry the
    board snapshot under "state"; failures come back as kind "error".
    """

    def __init__(self) -> None:
        self._cmd_q: "queue.Queue[WorkerCommand]" = queue.Queue()
        self._res_q: "queue.Queue[WorkerResult]" = queue.Queue()
        self._stop_evt = threading.Event()
        self._thread = threading.Thread(target=self._run, name="SolverWorker", daemon=True)

        self._board: Optional[Board] = None
        self._solver: Optional[NurikabeSolver] = None
        self.progress: Optional[ProgressChannel] = None

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop_evt.set()
        try:
            self._cmd_q.put_nowait(WorkerCommand(kind="stop"))
        except queue.Full:
            pass
        self._thread.join(timeout=1.0)

    def send(self, cmd: WorkerCommand) -> None:
        self._cmd_q.put(cmd)

    def try_recv(self) -> Optional[WorkerResult]:
        try:
            return self._res_q.get_nowait()
        except queue.Empty:
            return None

    def recv(self, timeout: float) -> Optional[WorkerResult]:
        try:
            return self._res_q.get(timeout=timeout)
        except queue.Empty:
            return None

    def _emit_state(self, kind: str, extra: Optional[Dict[str, Any]] = None) -> None:
        payload: Dict[str, Any] = {"state": self._board.snapshot()}
        if extra:
            payload.update(extra)
        self._res_q.put(WorkerResult(kind=kind, payload=payload))

    def _emit_error(self, message: str) -> None:
        self._res_q.put(WorkerResult(kind="error", payload={"message": message}))

    def _load(self, payload: Dict[str, Any]) -> None:
        puzzle = payload.get("puzzle")
        text = payload.get("text")
        if isinstance(puzzle, PuzzleDef):
            board = Board(puzzle)
        elif isinstance(text, str):
            board = board_from_text(text)
        else:
            raise ValueError("Load needs a 'puzzle' or a 'text' payload.")
        self._board = board
        self.progress = ProgressChannel(board.problem.size)
        self._solver = NurikabeSolver(board, progress=self.progress)
        self._solver.init_solve()

    def _run(self) -> None:
        while not self._stop_evt.is_set():
            try:
                cmd = self._cmd_q.get(timeout=WORKER_POLL_SECONDS)
            except queue.Empty:
                continue

            if cmd.kind == "stop":
                return

            if cmd.kind == "load":
                try:
                    self._load(cmd.payload or {})
                    self._emit_state("loaded")
                except Exception as e:
                    self._emit_error(f"Load failed: {e}")
                continue

            if self._solver is None:
                self._emit_error(f"No puzzle loaded for '{cmd.kind}'.")
                continue

            if cmd.kind == "step":
                try:
                    step_res = self._solver.step()
                    extra = {
                        "step_result": {
                            "changed_cells": list(step_res.changed_cells),
                            "message": step_res.message,
                            "rule": step_res.rule,
                        }
                    }
                    self._emit_state("stepped", extra=extra)
                except Exception as e:
                    self._emit_error(f"Step failed: {e}")
                continue

            if cmd.kind == "solve":
                options = cmd.payload or {}
                try:
                    solved, reason = self._solver.auto_solve(
                        make_guesses=bool(options.get("make_guesses", False)),
                        skip_expensive=bool(options.get("skip_expensive", False)),
                    )
                    self._emit_state("solved", extra={"solved": solved, "reason": reason})
                except Exception as e:
                    self._emit_error(f"Solve failed: {e}")
                continue

            self._emit_error(f"Unknown command '{cmd.kind}'.")
