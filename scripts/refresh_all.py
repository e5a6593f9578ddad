from pathlib import Path
import json
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from findash.config import settings
from findash.logging import setup_logging
from findash.pipeline.orchestrator import Refresher
from findash.store.observations import ObservationStore

if __name__ == '__main__':
    setup_logging()
    store = ObservationStore.open(settings.db_path)
    try:
        result = Refresher(store).run(trigger='cli')
    finally:
        store.close()
    print('Run', result['run_id'], result['status'])
    for batch in result['batches']:
        print(json.dumps(batch))
    sys.exit(0 if result['status'] in ('succeeded', 'partial') else 1)
