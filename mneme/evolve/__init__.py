"""Bounded memory evolution: configuration, prompts, parsers and the worker."""