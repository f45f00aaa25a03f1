"""Protean Engine runner for the feedback domain.

Only needed when event processing is async (the production overlay): the
Engine picks up stored events and runs the projectors and the notification
handlers.

Usage:
    PROTEAN_ENV=production python src/server.py
    python src/server.py --test-mode     # drain pending events, then exit
"""

import argparse

from protean.server.engine import Engine


def _get_domain():
    from feedback.domain import feedback

    feedback.init()
    return feedback


def run(test_mode=False, debug=False):
    engine = Engine(_get_domain(), test_mode=test_mode, debug=debug)
    engine.run()


def main():
    parser = argparse.ArgumentParser(description="Club Feedback Engine runner")
    parser.add_argument("--test-mode", action="store_true", help="Process pending messages and exit")
    parser.add_argument("--debug", action="store_true", help="Log every message the engine handles")
    args = parser.parse_args()

    run(test_mode=args.test_mode, debug=args.debug)


if __name__ == "__main__":
    main()
