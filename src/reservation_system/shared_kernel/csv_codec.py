"""
Кодек одной строки CSV.

Каждое поле оборачивается в кавычки, кавычки внутри поля удваиваются.
Модуль не выполняет ввод-вывод и ничего не знает о типах полей.
"""

from typing import List, Sequence

from .domain import FormatError


class CsvCodec:
    """Кодирует и декодирует запись в одну строку с разделителем."""

    def __init__(self, delimiter: str = ",", quote: str = '"'):
        if len(delimiter) != 1 or len(quote) != 1:
            raise ValueError("Delimiter and quote must be single characters")
        if delimiter == quote:
            raise ValueError("Delimiter and quote must differ")
        if delimiter in "\r\n" or quote in "\r\n":
            raise ValueError("Line breaks cannot be used as delimiter or quote")
        self.delimiter = delimiter
        self.quote = quote

    def encode(self, fields: Sequence[str]) -> str:
        """Кодирует последовательность полей в строку без перевода строки."""
        encoded = []
        for field in fields:
            if "\n" in field or "\r" in field:
                raise FormatError(f"Line breaks are not allowed in a field: {field!r}")
            escaped = field.replace(self.quote, self.quote * 2)
            encoded.append(f"{self.quote}{escaped}{self.quote}")
        return self.delimiter.join(encoded)

    def decode(self, line: str) -> List[str]:
        """Декодирует строку обратно в список полей.

        Принимает как поля в кавычках, так и поля без кавычек (так старые
        файлы хранили ставку за ночь). Пустая строка дает пустой список.
        """
        line = line.rstrip("\r\n")
        if not line:
            return []

        fields: List[str] = []
        i = 0
        length = len(line)
        while True:
            if i < length and line[i] == self.quote:
                field, i = self._read_quoted(line, i + 1)
                if i < length and line[i] != self.delimiter:
                    raise FormatError(
                        f"Unexpected character {line[i]!r} after closing quote "
                        f"at position {i}"
                    )
            else:
                end = line.find(self.delimiter, i)
                if end == -1:
                    end = length
                field = line[i:end]
                if self.quote in field:
                    raise FormatError(
                        f"Stray quote inside unquoted field at position {i}"
                    )
                i = end
            fields.append(field)

            if i >= length:
                return fields
            # line[i] - разделитель
            i += 1

    def _read_quoted(self, line: str, i: int):
        chars = []
        length = len(line)
        while i < length:
            char = line[i]
            if char == self.quote:
                if i + 1 < length and line[i + 1] == self.quote:
                    chars.append(self.quote)
                    i += 2
                    continue
                return "".join(chars), i + 1
            chars.append(char)
            i += 1
        raise FormatError("Unterminated quoted field")


DEFAULT_CODEC = CsvCodec()


def encode_line(fields: Sequence[str]) -> str:
    return DEFAULT_CODEC.encode(fields)


def decode_line(line: str) -> List[str]:
    return DEFAULT_CODEC.decode(line)
