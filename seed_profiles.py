# seed_profiles.py
from dotenv import load_dotenv

load_dotenv()

from pulse import create_app
from pulse.extensions import db
from pulse.models import Profile, Task

AVATAR_COLORS = ["#ff8800", "#3b82f6", "#10b981", "#ef4444", "#a855f7"]


def main(num_profiles=500, num_tasks=20):
    app = create_app()
    with app.app_context():
        db.create_all()

        existing = Profile.query.count()
        print(f"Existing profiles: {existing}")

        profiles = []
        for i in range(num_profiles):
            n = existing + i + 1
            p = Profile(
                name=f"Test User {n}",
                email=f"test.user{n}@example.com",
                avatar_color=AVATAR_COLORS[n % len(AVATAR_COLORS)],
                daily_streak=0,
            )
            db.session.add(p)
            profiles.append(p)

        db.session.flush()

        # A handful of tasks so challenges have something to point at
        for i in range(min(num_tasks, len(profiles))):
            db.session.add(Task(
                title=f"Seed Task {i + 1}",
                description="Generated by seed_profiles.py",
                creator_id=profiles[i].id,
            ))

        db.session.commit()
        print(f"Now have {Profile.query.count()} profiles and {Task.query.count()} tasks in the DB.")


if __name__ == "__main__":
    main()
