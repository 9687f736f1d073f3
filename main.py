from rich.pretty import pprint

from argbind import *

__prog__ = "test"

test = Command(
    "test",
    options=[
        Flag("-s", "--silent", descr="Silence all test output"),
        Key("-t", "--times", type=int, validation=greater_than(0)),
    ],
    params=[
        Param("testName"),
        Param("testerName", optional=True),
    ],
)


if __name__ == '__main__':
    pprint(parse(test, shell=True, fancy=True))
