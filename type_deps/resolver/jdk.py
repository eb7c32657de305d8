"""Well-known JDK types, used to qualify names without a classpath."""

from __future__ import annotations

JDK_TYPES: dict[str, frozenset[str]] = {
    "java.lang": frozenset({
        "AutoCloseable", "Boolean", "Byte", "Character", "CharSequence",
        "Class", "ClassCastException", "ClassLoader", "Cloneable",
        "Comparable", "Deprecated", "Double", "Enum", "Error", "Exception",
        "Float", "FunctionalInterface", "IllegalArgumentException",
        "IllegalStateException", "IndexOutOfBoundsException", "Integer",
        "InterruptedException", "Iterable", "Long", "Math",
        "NullPointerException", "Number", "NumberFormatException", "Object",
        "Override", "Process", "ProcessBuilder", "Record", "Runnable",
        "Runtime", "RuntimeException", "SafeVarargs", "Short", "StackOverflowError",
        "String", "StringBuffer", "StringBuilder", "SuppressWarnings", "System",
        "Thread", "ThreadLocal", "Throwable", "UnsupportedOperationException",
        "Void",
    }),
    "java.util": frozenset({
        "AbstractList", "AbstractMap", "ArrayDeque", "ArrayList", "Arrays",
        "BitSet", "Calendar", "Collection", "Collections", "Comparator",
        "Date", "Deque", "EnumMap", "EnumSet", "HashMap", "HashSet",
        "Iterator", "LinkedHashMap", "LinkedHashSet", "LinkedList", "List",
        "ListIterator", "Locale", "Map", "NavigableMap", "NavigableSet",
        "NoSuchElementException", "Objects", "Optional", "OptionalInt",
        "PriorityQueue", "Properties", "Queue", "Random", "Scanner", "Set",
        "SortedMap", "SortedSet", "Stack", "StringJoiner", "Timer",
        "TreeMap", "TreeSet", "UUID", "Vector", "WeakHashMap",
    }),
    "java.util.function": frozenset({
        "BiConsumer", "BiFunction", "BiPredicate", "BinaryOperator",
        "BooleanSupplier", "Consumer", "Function", "IntFunction",
        "Predicate", "Supplier", "ToIntFunction", "UnaryOperator",
    }),
    "java.util.concurrent": frozenset({
        "Callable", "CompletableFuture", "ConcurrentHashMap",
        "ConcurrentLinkedQueue", "CountDownLatch", "CopyOnWriteArrayList",
        "ExecutionException", "Executor", "ExecutorService", "Executors",
        "Future", "LinkedBlockingQueue", "BlockingQueue", "ScheduledExecutorService",
        "Semaphore", "ThreadPoolExecutor", "TimeUnit", "TimeoutException",
    }),
    "java.util.stream": frozenset({
        "Collectors", "IntStream", "LongStream", "Stream", "StreamSupport",
    }),
    "java.io": frozenset({
        "BufferedReader", "BufferedWriter", "ByteArrayInputStream",
        "ByteArrayOutputStream", "Closeable", "File", "FileInputStream",
        "FileNotFoundException", "FileOutputStream", "FileReader",
        "FileWriter", "IOException", "InputStream", "InputStreamReader",
        "ObjectInputStream", "ObjectOutputStream", "OutputStream",
        "PrintStream", "PrintWriter", "Reader", "Serializable",
        "UncheckedIOException", "Writer",
    }),
    "java.nio.file": frozenset({
        "Files", "Path", "Paths", "StandardOpenOption",
    }),
    "java.math": frozenset({"BigDecimal", "BigInteger", "RoundingMode"}),
    "java.time": frozenset({
        "Clock", "Duration", "Instant", "LocalDate", "LocalDateTime",
        "LocalTime", "OffsetDateTime", "Period", "ZoneId", "ZonedDateTime",
    }),
    "java.text": frozenset({
        "DateFormat", "DecimalFormat", "MessageFormat", "NumberFormat",
        "SimpleDateFormat",
    }),
    "java.net": frozenset({
        "HttpURLConnection", "InetAddress", "Socket", "ServerSocket",
        "URI", "URL", "URLConnection",
    }),
}
