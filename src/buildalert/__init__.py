"""Notification topics for a continuous integration dashboard.

Builds submitted to the dashboard are classified into *topics*, such as
compiler errors or failing tests, and the subscribers that are interested
in a topic are notified about the builds that exhibit it.
What follows here is a quick tour of the code.

Overview
========

The `buildalert.topics` package contains the topic chain: a sequence of
`Topic` objects, each wrapping the next. Builds are offered to the
outermost topic and every topic collects the builds that match it.
The concrete topics live in the modules of that package and are found
by name through `createTopicChain()`.

The builds themselves are described in `buildalert.buildlib`; they are
owned by the dashboard's persistence layer and can be loaded from a JSON
submission using `buildalert.submission`.

The `buildalert.notification` module creates a topic chain for each
subscriber, decides which builds the subscriber was not yet notified about,
and sends e-mail using Twisted. The message content is produced by
`buildalert.topicview`.
"""
