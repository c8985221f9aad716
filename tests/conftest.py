"""
Pytest configuration and shared fixtures
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from element_sorter.core.java_parser import JavaSourceParser  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def parser() -> JavaSourceParser:
    return JavaSourceParser()


@pytest.fixture
def unsorted_fields_source() -> str:
    """Fields in reverse order, no methods"""
    return """public class Account {
    private int b;
    public String a;
    public static int C;
}
"""


@pytest.fixture
def sample_java_code() -> str:
    """A class mixing fields, methods, comments and a constructor"""
    return """package com.acme.orders;

import java.util.List;

/**
 * An order.
 */
public class Order {
    private String status;

    // Primary key
    @Id
    private Long id;

    public static final int MAX_LINES = 50;

    public Order() {
        this.status = "NEW";
    }

    /**
     * Recalculate the totals.
     */
    public void recalculate() {
        total = 0;
    }

    private List<String> lines;

    protected void archive() {
    }

    public String getStatus() {
        return status;
    }
}
"""


@pytest.fixture
def nested_java_code() -> str:
    """Class with a nested class whose members are unsorted"""
    return """public class Outer {
    private int z;

    static class Inner {
        private int y;
        public int x;
    }

    public int a;
}
"""


@pytest.fixture
def java_file(temp_dir: Path, sample_java_code: str) -> Path:
    """Write the sample class to Order.java"""
    path = temp_dir / "Order.java"
    path.write_text(sample_java_code, encoding="utf-8")
    return path
