# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

import sys

from subagent_optimizer.cli import main

sys.exit(main())
