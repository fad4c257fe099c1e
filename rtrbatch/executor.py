from typing import Iterable, Optional

from .api import RTRClient
from .executor_utils.batch_controller import BatchController, MAX_WORKERS, PACE_INTERVAL
from .executor_utils.response_models import ExecutionPolicy
from .executor_utils.target_task import TargetTask


class RTRBatchExecutor:
    """Runs one script on every target through an authenticated RTRClient."""

    def __init__(
        self,
        client: RTRClient,
        policy: Optional[ExecutionPolicy] = None,
        max_workers: int = MAX_WORKERS,
        pace_interval: float = PACE_INTERVAL,
        verbose: bool = False
    ):
        self.client = client
        self.policy = policy or ExecutionPolicy()
        self.max_workers = max_workers
        self.pace_interval = pace_interval
        self.verbose = verbose

    def execute(self, targets: Iterable[str], script: str) -> int:
        """
        Run the script on each target and print every target's stdout.

        Args:
            targets: Target IDs, each used for exactly one batch session
            script: Script body sent as a raw runscript command

        Returns:
            Number of targets attempted
        """
        task = TargetTask(self.client, script, self.policy, verbose=self.verbose)
        controller = BatchController(
            task.run,
            max_workers=self.max_workers,
            pace_interval=self.pace_interval,
            verbose=self.verbose
        )
        return controller.run(targets)
