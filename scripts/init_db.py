from pathlib import Path
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from findash.config import settings
from findash.store.domains import DOMAINS
from findash.store.observations import ObservationStore

if __name__ == '__main__':
    store = ObservationStore.open(settings.db_path)
    try:
        counts = ', '.join(f'{name}={store.count(name)}' for name in DOMAINS)
        print('DB ready at', settings.db_path, '|', counts)
    finally:
        store.close()
