import asyncio
import os

from jobtrack_sync.auth import InMemoryAuthProvider
from jobtrack_sync.container import AppContainer
from jobtrack_sync.models import ApplicationStatus, InterviewMode
from jobtrack_sync.remote import InMemoryRemoteStore


async def run_example():
    paths = ["example_laptop.db", "example_phone.db"]
    for path in paths:
        if os.path.exists(path):
            os.remove(path)

    print("--- Jobtrack Sync: Basic Example ---")

    # 1. Two devices share one remote store
    remote = InMemoryRemoteStore()
    auth = InMemoryAuthProvider()
    laptop = AppContainer.create(paths[0], remote, auth)
    phone = AppContainer.create(paths[1], remote, auth)

    try:
        # 2. Work offline on the laptop
        application = await laptop.add_application(
            "Acme", "Backend Engineer", ApplicationStatus.APPLIED, laptop.clock.now_ms()
        )
        await laptop.add_task(application.id, "Send portfolio")
        await laptop.add_interview(
            application.id, laptop.clock.now_ms() + 86_400_000, InterviewMode.VIDEO
        )
        print(f"Pending on laptop: {await laptop.coordinator.refresh_pending()}")

        # 3. Sign in and sync both devices
        await auth.sign_up("sam@example.com", "correct horse")
        pushed = await laptop.coordinator.sync_now()
        pulled = await phone.coordinator.sync_now()
        print(f"Laptop pushed {pushed.value.total_pushed} rows.")
        print(f"Phone pulled {pulled.value.total_pulled} rows.")

        # 4. The phone now sees the application and its timeline
        on_phone = await phone.applications.get_by_id(application.id)
        history = await phone.history.get_by_application_id(application.id)
        print(f"Phone has: {on_phone.company} / {on_phone.role} ({on_phone.status.name})")
        for entry in history:
            print(f"  {entry.to_status.name}: {entry.note}")
    finally:
        await laptop.close()
        await phone.close()

    print("\nExample finished. Databases saved to", ", ".join(paths))


if __name__ == "__main__":
    asyncio.run(run_example())
