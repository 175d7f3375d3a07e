import sys

from govcon_ingest.cli.main import main

sys.exit(main())
