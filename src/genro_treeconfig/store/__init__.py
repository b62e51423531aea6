# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Configuration store package - hierarchical configurations and views.

The package is organized into:
- core: TreeConfiguration, the root configuration owning the node tree
- subconfig: SubConfiguration, live views rooted at an interior node

Example:
    >>> from genro_treeconfig import TreeConfiguration
    >>> config = TreeConfiguration()
    >>> config.add_property('database.host', 'localhost')
    >>> config.configuration_at('database').get('host')
    'localhost'
"""

from .core import MISSING, TreeConfiguration, split_values
from .subconfig import SubConfiguration

__all__ = ["MISSING", "TreeConfiguration", "SubConfiguration", "split_values"]
