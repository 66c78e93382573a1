"""
Headless session runner: start a session, print status JSON until Ctrl+C.
"""
from __future__ import annotations
import argparse, json, logging, time
from core.config import Settings
from core.context import EngineContext
from core.emotion import DEFAULT_EMOTIONS
from core.models import SessionConfig
from core.session import SessionController, SessionError

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--health", action="store_true", help="Only check backend health and exit")
    p.add_argument("--name", default="", help="Display name (remembered for next runs)")
    p.add_argument("--meeting-url", help="Meeting link the bot should join")
    p.add_argument("--objective", help="What you want to achieve in this meeting")
    p.add_argument("--emotions", default=",".join(DEFAULT_EMOTIONS), help="Comma-separated emotions to monitor")
    p.add_argument("--interval", type=float, default=2.0, help="Seconds between status prints")
    args = p.parse_args()

    settings = Settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    controller = SessionController(EngineContext.from_settings(settings))

    if args.health:
        print(controller.check_health().model_dump_json(indent=2))
        controller.shutdown()
        return

    config = SessionConfig(
        user_name=args.name,
        meeting_url=args.meeting_url or "",
        meeting_objective=args.objective or "",
        selected_emotions=[e.strip() for e in args.emotions.split(",") if e.strip()],
    )
    controller.startup()
    try:
        if not controller.start(config):
            print(f"❌ {controller.snapshot().status}")
            return
        while True:
            time.sleep(args.interval)
            print(json.dumps(controller.snapshot().model_dump(), ensure_ascii=False))
    except SessionError as e:
        p.error(str(e))
    except KeyboardInterrupt:
        pass
    finally:
        controller.close_app()

if __name__ == "__main__":
    main()
