"""Framework types that source files reference without declaring them."""

_TYPES = {
    "System": {
        "class": [
            "Object", "String", "Exception", "ArgumentException", "ArgumentNullException",
            "ArgumentOutOfRangeException", "InvalidOperationException", "NotImplementedException",
            "NotSupportedException", "NullReferenceException", "Type", "Attribute", "Array",
            "Delegate", "MulticastDelegate", "Enum", "EventArgs", "Uri", "Random", "Lazy`1",
            "Tuple`1", "Tuple`2", "Tuple`3", "Tuple`4", "Math", "Console", "Convert",
        ],
        "struct": [
            "Boolean", "Char", "SByte", "Byte", "Int16", "UInt16", "Int32", "UInt32", "Int64",
            "UInt64", "IntPtr", "UIntPtr", "Single", "Double", "Decimal", "DateTime",
            "DateTimeOffset", "TimeSpan", "Guid", "Nullable`1", "Span`1", "ReadOnlySpan`1",
            "Memory`1", "ReadOnlyMemory`1", "ValueTuple`1", "ValueTuple`2", "ValueTuple`3",
            "ValueTuple`4", "ValueTuple`5", "ValueTuple`6", "ValueTuple`7", "Void",
        ],
        "interface": [
            "IDisposable", "IComparable", "IComparable`1", "IEquatable`1", "ICloneable",
            "IFormattable", "IServiceProvider",
        ],
        "delegate": [
            "Action", "Action`1", "Action`2", "Action`3", "Action`4", "Func`1", "Func`2",
            "Func`3", "Func`4", "Func`5", "Predicate`1", "Comparison`1", "EventHandler",
            "EventHandler`1",
        ],
    },
    "System.Collections": {
        "class": ["ArrayList", "Hashtable"],
        "interface": ["IEnumerable", "IEnumerator", "ICollection", "IList", "IDictionary"],
    },
    "System.Collections.Generic": {
        "class": [
            "List`1", "Dictionary`2", "HashSet`1", "Queue`1", "Stack`1", "LinkedList`1",
            "SortedDictionary`2", "SortedList`2", "SortedSet`1", "Comparer`1", "EqualityComparer`1",
        ],
        "struct": ["KeyValuePair`2"],
        "interface": [
            "IEnumerable`1", "IEnumerator`1", "ICollection`1", "IList`1", "IDictionary`2",
            "IReadOnlyCollection`1", "IReadOnlyList`1", "IReadOnlyDictionary`2", "ISet`1",
            "IComparer`1", "IEqualityComparer`1",
        ],
    },
    "System.IO": {
        "class": ["Stream", "MemoryStream", "FileStream", "TextReader", "TextWriter",
                  "StreamReader", "StreamWriter", "BinaryReader", "BinaryWriter", "File", "Path"],
    },
    "System.Text": {
        "class": ["StringBuilder", "Encoding"],
    },
    "System.Text.RegularExpressions": {
        "class": ["Regex", "Match"],
    },
    "System.Reflection": {
        "class": ["Assembly", "MemberInfo", "MethodBase", "MethodInfo", "ConstructorInfo",
                  "FieldInfo", "PropertyInfo", "ParameterInfo"],
    },
    "System.Threading": {
        "class": ["Thread", "Monitor", "SemaphoreSlim"],
        "struct": ["CancellationToken"],
    },
    "System.Threading.Tasks": {
        "class": ["Task", "Task`1"],
        "struct": ["ValueTask", "ValueTask`1"],
    },
}

# Full metadata name -> type kind
WELL_KNOWN_TYPES = {
    f"{namespace}.{name}": kind
    for namespace, kinds in _TYPES.items()
    for kind, names in kinds.items()
    for name in names
}

# Simple arity-suffixed name -> full metadata name, for sources missing usings
WELL_KNOWN_BY_NAME = {
    full_name.rsplit(".", 1)[-1]: full_name
    for full_name in sorted(WELL_KNOWN_TYPES, key=lambda n: n.count("."), reverse=True)
}
