"""Per-run state for the simulate/analyze/report pipeline."""

from __future__ import annotations
from contextlib import contextmanager
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import numpy as np
import structlog

from ..contracts.types import DatasetType, Design, ModelType


class RunContext:
    """Identity, random stream, stage timings and output directory of one run.

    The logger is bound to the run id and the analysis selection
    (design, model type, dataset type) so every pipeline event carries them.
    """

    def __init__(
        self,
        run_id: str,
        seed: int,
        design: Design,
        model_type: ModelType,
        dataset_type: DatasetType,
        artifact_dir: Union[str, Path] = "results",
    ):
        self.run_id = run_id
        self.seed = seed
        self.design = design
        self.model_type = model_type
        self.dataset_type = dataset_type
        self.run_dir = Path(artifact_dir) / run_id
        # Simulation draws come from this generator only
        self.rng = np.random.default_rng(seed)
        self.logger = structlog.get_logger().bind(
            run_id=run_id,
            design=design.value,
            model_type=model_type.value,
            dataset_type=dataset_type.value,
        )
        self.stage_times: Dict[str, float] = {}
        self._started: Optional[float] = None

    @classmethod
    def from_config(cls, config, run_id: str, artifact_dir: Union[str, Path]) -> "RunContext":
        """Context for ``config``'s simulation seed and analysis selection."""
        return cls(
            run_id,
            config.simulation.seed,
            config.simulation.design,
            config.analysis.model_type,
            config.analysis.dataset_type,
            artifact_dir,
        )

    def start_run(self) -> None:
        self._started = time.perf_counter()
        self.logger.info("Pipeline execution started", seed=self.seed)

    def end_run(self) -> float:
        """Log completion and return seconds since start_run (0.0 if never started)."""
        if self._started is None:
            return 0.0
        runtime = time.perf_counter() - self._started
        self.logger.info("Pipeline execution completed", runtime_s=runtime)
        return runtime

    @contextmanager
    def time_stage(self, stage: str) -> Iterator[None]:
        """Record the wall time of a pipeline stage, logging failures with the error."""
        self.logger.info("Stage started", stage=stage)
        started = time.perf_counter()
        try:
            yield
        except Exception as e:
            self.stage_times[stage] = time.perf_counter() - started
            self.logger.error("Stage failed", stage=stage, runtime_s=self.stage_times[stage], error=str(e))
            raise
        self.stage_times[stage] = time.perf_counter() - started
        self.logger.info("Stage completed", stage=stage, runtime_s=self.stage_times[stage])

    def artifact_path(self, name: str) -> Path:
        """Path of an artifact in the run directory, which is created on demand."""
        self.run_dir.mkdir(parents=True, exist_ok=True)
        return self.run_dir / name

    def metadata(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "seed": self.seed,
            "design": self.design.value,
            "model_type": self.model_type.value,
            "dataset_type": self.dataset_type.value,
            "stage_times": dict(self.stage_times),
            "total_runtime_s": sum(self.stage_times.values()),
        }
