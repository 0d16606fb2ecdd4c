import time

import dotenv

from eventsource_session import EventSourceSession

dotenv.load_dotenv()

# EVENTSOURCE_URL viene del .env
session = EventSourceSession()

session.state.subscribe(lambda state: print("state:", state.value))
session.data.subscribe(lambda payload: print("data:", payload))
session.error.subscribe(lambda error: print("error:", error))

with session:
    time.sleep(30)
