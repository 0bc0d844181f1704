import sys

from crawl.cli import main

sys.exit(main())
