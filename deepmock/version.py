PACKAGE = "deepmock"
VERSION = "0.7.0"
WEBSITE = "https://github.com/deepmock/deepmock"
LICENSE = "Apache License 2.0"
