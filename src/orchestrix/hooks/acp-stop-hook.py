#!/usr/bin/env python3
"""
Hook: Forward agent output to the orchestration gateway when a turn ends.

Triggered by: Stop
When: A Claude Code agent in an orchestrix workspace finishes a turn
Action: Resolve workspace + agent, skip mid-turn pauses (dev/qa), POST the
        agent's recent tmux output to <gateway>/api/hook

Always exits 0; diagnostics go to /tmp/acp-stop-hook.log.

Installation:
  orchestrix install-hook
  (copies this script to <project>/.orchestrix-core/scripts/ and registers:)
  {
    "hooks": {
      "Stop": [
        {
          "hooks": [
            {
              "type": "command",
              "command": "python3 \"$(git rev-parse --show-toplevel)/.orchestrix-core/scripts/acp-stop-hook.py\""
            }
          ]
        }
      ]
    }
  }
"""
import sys


def main():
    """Main entry point for the Stop hook."""
    try:
        from orchestrix.path_utils import project_root_from_script
        from orchestrix.stop_hook import main as run_hook
    except ImportError:
        # orchestrix not installed for this interpreter; nothing to forward
        sys.exit(0)

    # <project>/.orchestrix-core/scripts/acp-stop-hook.py -> <project>
    project_root = project_root_from_script(__file__)
    sys.exit(run_hook(project_root, sys.stdin))


if __name__ == '__main__':
    main()
