"""Desktop Notification Manager for Xtraprep"""

import logging
import shutil
import subprocess


class NotificationManager:
    """Sends desktop notifications when a prepare finishes"""

    def __init__(self):
        self.logger = logging.getLogger("NotificationManager")
        self.enabled = self._check_notification_support()

    def _check_notification_support(self) -> bool:
        """Check if notify-send is available"""
        if shutil.which("notify-send"):
            self.logger.debug("Desktop notifications enabled (notify-send)")
            return True

        self.logger.debug("Desktop notifications not available")
        return False

    def send(self, title: str, message: str, urgency: str = "normal", icon: str | None = None) -> bool:
        """Send a desktop notification

        Args:
            title: Notification title
            message: Notification message
            urgency: Urgency level ('low', 'normal', 'critical')
            icon: Optional icon name

        Returns:
            True if notification sent successfully, False otherwise
        """
        if not self.enabled:
            return False

        cmd = ["notify-send", f"--urgency={urgency}"]
        if icon:
            cmd.extend(["--icon", icon])
        cmd.extend([title, message])

        try:
            subprocess.run(cmd, check=False, capture_output=True, timeout=10)
            return True
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.warning(f"Failed to send notification: {e}")
            return False

    def notify_prepare_success(self, backup_name: str, destination: str) -> bool:
        """Send notification for a finished prepare"""
        return self.send("✅ Backup Prepared", f"Backup: {backup_name}\nReady in: {destination}", icon="emblem-default")

    def notify_prepare_failure(self, backup_name: str, error: str = "") -> bool:
        """Send notification for a failed prepare"""
        message = f"Backup: {backup_name}"
        if error:
            # Truncate long error messages
            error_short = error[:100] + "..." if len(error) > 100 else error
            message += f"\nError: {error_short}"

        return self.send("❌ Backup Preparation Failed", message, urgency="critical", icon="dialog-error")
