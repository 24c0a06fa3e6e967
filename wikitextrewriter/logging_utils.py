# Logger shared by all modules of the package
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import logging

logger = logging.getLogger("wikitextrewriter")
