import sys

from unified_store.cli import main

sys.exit(main())
