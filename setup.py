#!/usr/bin/env python3
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See LICENSE and https://ylonen.org

from setuptools import setup

with open("README.md", "r") as f:
    long_description = f.read()

setup(name="wikitextrewriter",
      version="0.1.0",
      description="Offset-preserving parser and rewriter for MediaWiki wikitext: tags, sections, parameters, templates and wikilinks",
      long_description=long_description,
      long_description_content_type="text/markdown",
      author="Tatu Ylonen",
      author_email="ylo@clausal.com",
      license="MIT",
      scripts=[],
      packages=["wikitextrewriter"],
      package_data={"wikitextrewriter": ["data/*/*.json"]},
      python_requires=">=3.9",
      install_requires=["lru-dict"],
      extras_require={"dev": ["pytest", "requests"]},
      keywords=[
          "wikipedia",
          "wiktionary",
          "mediawiki",
          "wikitext",
          "parser",
          "bot",
      ],
      classifiers=[
          "Development Status :: 3 - Alpha",
          "Intended Audience :: Developers",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English",
          "Operating System :: OS Independent",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3 :: Only",
          "Topic :: Text Processing",
          "Topic :: Text Processing :: Markup",
          ])
