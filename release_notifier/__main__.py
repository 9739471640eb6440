import sys

from release_notifier.main import main

sys.exit(main())
