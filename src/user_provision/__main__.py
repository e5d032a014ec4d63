import sys

from user_provision.main import main

sys.exit(main())
