import sys

from walletguard.cli import main

sys.exit(main())
