"""Base sensor classes for controller monitoring.

This module defines the base OperatorSensor class that provides lifecycle hooks
for monitoring boot image controller events. All hooks are no-ops by default,
allowing subclasses to override only the events they care about.

The hook pattern follows Faust's sensor design:
- Hooks come in pairs: on_X_start() and on_X_complete()
- Start hooks return an optional state dict for tracking multi-phase operations
- Complete hooks receive the state dict from their corresponding start hook
- All hooks are optional - sensors only implement what they need
"""

from typing import Dict, List, Optional, Any
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for boot image controller monitoring.

    This class defines lifecycle hooks for the controller's main activities:
    1. Triggers (watch events deciding a pass must run)
    2. Passes (one full reconciliation over every enrolled resource)
    3. Resource patches and hot loop detections
    4. Status condition writes

    All methods are no-ops by default. Subclasses override only the hooks
    they need to monitor.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_pass_start(self, reason: str) -> Dict:
                return {'start_time': time.time()}

            def on_pass_complete(self, reason, state, stats, error=None) -> None:
                duration = time.time() - state['start_time']
                logger.info(f"Pass for {reason} took {duration}s")
    """

    # =============================================================================
    # Trigger Hooks
    # =============================================================================

    def on_trigger(self, reason: str) -> None:
        """Called when a watch event results in a pass being scheduled.

        Args:
            reason: Trigger reason, e.g. MAPIMachinesetUpdated
        """
        pass

    # =============================================================================
    # Pass Lifecycle Hooks
    # =============================================================================

    def on_pass_start(self, reason: str) -> Optional[Dict[str, Any]]:
        """Called once a pass holds the pass lock.

        Args:
            reason: Trigger reason the pass runs for

        Returns:
            Optional state dict passed to on_pass_complete
        """
        pass

    def on_pass_complete(
        self,
        reason: str,
        state: Optional[Dict[str, Any]],
        stats: Dict[str, Dict[str, int]],
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a pass finishes, after conditions were reported.

        Args:
            reason: Trigger reason the pass ran for
            state: State dict from on_pass_start
            stats: Per category display name, the pass counters
                (total, inProgress, errored)
            error: Pass-level error, if any
        """
        pass

    # =============================================================================
    # Resource Hooks
    # =============================================================================

    def on_patch(
        self,
        category: str,
        namespace: str,
        name: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called after a boot image patch was sent to a resource.

        Args:
            category: Display name of the resource category
            namespace: Kubernetes namespace
            name: Resource name
            success: Whether the API accepted the patch
            error: Error raised by the store, if any
        """
        pass

    def on_hot_loop_detected(
        self,
        category: str,
        namespace: str,
        name: str,
        count: int,
    ) -> None:
        """Called when a resource exceeded the hot loop limit.

        Args:
            category: Display name of the resource category
            namespace: Kubernetes namespace
            name: Resource name
            count: Number of times the same boot image was pushed
        """
        pass

    # =============================================================================
    # Status Hooks
    # =============================================================================

    def on_condition_update(
        self,
        condition_types: List[str],
        attempts: int,
        success: bool,
    ) -> None:
        """Called after the status conditions were written (or failed to be).

        Args:
            condition_types: Condition types whose content changed
            attempts: Number of write attempts, including conflicts
            success: Whether the write eventually succeeded
        """
        pass
