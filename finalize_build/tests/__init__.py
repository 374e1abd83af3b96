# -*- coding: utf-8 -*-

from .helper import run_cov_test
