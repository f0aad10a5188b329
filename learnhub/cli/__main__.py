import sys

from learnhub.cli import main

sys.exit(main())
